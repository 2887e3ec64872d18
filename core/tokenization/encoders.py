"""
Encoders - Quan ly tiktoken encoder cho token counting.

Moi encoding name (vd: "cl100k_base") co mot encoder duy nhat,
tao lazy lan dau can dung va cache lai cho ca process.
tiktoken.Encoding an toan khi goi encode() tu nhieu threads.

Functions:
- get_encoder(): Lay encoder theo ten, None neu khong load duoc
- is_encoder_available(): Check nhanh co dung exact mode duoc khong
- estimate_tokens(): Heuristic ceil(len * ratio) khi khong co encoder
- reset_encoders(): Xoa cache (dung trong tests)
"""

import math
import threading
from typing import Any, Dict, Optional

import tiktoken

from core.logging_config import log_info, log_warning

DEFAULT_ENCODING = "cl100k_base"
DEFAULT_TOKEN_RATIO = 0.25

# encoding_name -> Encoding (hoac None neu load that bai)
_encoders: Dict[str, Optional[Any]] = {}
_encoder_lock = threading.Lock()


def get_encoder(encoding_name: str = DEFAULT_ENCODING) -> Optional[Any]:
    """
    Lay encoder theo ten (thread-safe).

    Load that bai (encoding khong ton tai, khong tai duoc BPE file...)
    duoc cache la None de khong thu lai moi lan goi.

    Args:
        encoding_name: Ten tiktoken encoding

    Returns:
        tiktoken.Encoding hoac None
    """
    # Fast path: da co trong cache (khong can lock)
    if encoding_name in _encoders:
        return _encoders[encoding_name]

    with _encoder_lock:
        # Double-check sau khi lay lock
        if encoding_name in _encoders:
            return _encoders[encoding_name]

        try:
            encoder = tiktoken.get_encoding(encoding_name)
            log_info(f"[Encoders] Using tiktoken {encoding_name}")
        except Exception as e:
            encoder = None
            log_warning(f"[Encoders] Cannot load encoding {encoding_name}: {e}")

        _encoders[encoding_name] = encoder
        return encoder


def is_encoder_available(encoding_name: str = DEFAULT_ENCODING) -> bool:
    return get_encoder(encoding_name) is not None


def estimate_tokens(text: str, token_ratio: float = DEFAULT_TOKEN_RATIO) -> int:
    """
    Uoc luong so token khi encoder khong kha dung.

    Quy tac: ceil(so ky tu * token_ratio), mac dinh ~4 ky tu = 1 token.

    Args:
        text: Text can uoc luong
        token_ratio: Tokens tren moi ky tu

    Returns:
        So token uoc luong (0 cho text rong)
    """
    if not text:
        return 0
    return math.ceil(len(text) * token_ratio)


def reset_encoders() -> None:
    """Xoa encoder cache. Lan goi get_encoder() tiep theo se load lai."""
    with _encoder_lock:
        _encoders.clear()
