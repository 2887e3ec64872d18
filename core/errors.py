"""
Error Classes - Phan loai loi cho ingestion va token accounting.

Chinh sach lan truyen:
- ConfigurationError: loi tien quyet (root khong ton tai, limit sai) -> raise cho caller
- IngestionIOError: file/folder khong doc duoc -> log va bo qua
- TokenEncodingError: encoder loi tren 1 unit -> fallback heuristic cho unit do
- CancellationRequested: huy hop tac -> tra ve partial result (cancelled=True)
"""


class AnalyzerError(Exception):
    """Base error cho ingestion/token accounting."""

    pass


class ConfigurationError(AnalyzerError):
    """Tham so dau vao khong hop le (root path, model limit...)."""

    pass


class IngestionIOError(AnalyzerError):
    """File hoac directory khong doc duoc."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


class TokenEncodingError(AnalyzerError):
    """Encoder that bai tren mot text unit."""

    pass


class CancellationRequested(AnalyzerError):
    """Operation bi huy boi caller."""

    pass
