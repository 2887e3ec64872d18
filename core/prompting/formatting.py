"""
Prompt Formatting - Cac doan text tong hop bao quanh noi dung file

TokenEstimator dem token cua chinh cac doan text nay, va prompt_builder
ghep chung vao prompt. Ca hai phai dung cung mot nguon de so token
estimate khop voi prompt that.
"""

from core.language_utils import get_language_for_extension

SOURCE_FILES_BANNER = "--- SOURCE FILES ---\n\n"
NO_FILES_BANNER = "--- NO FILES AVAILABLE TO INCLUDE ---\n\n"
ADDITIONAL_INSTRUCTIONS_HEADER = "--- Additional Instructions/Question ---\n"
DEFAULT_ANALYSIS_LEAD = "Please analyze the following code files:\n\n"

FILE_FOOTER = "\n```\n"


def format_section_header(extension: str) -> str:
    """
    Header cho nhom file cung extension.

    >>> format_section_header(".py")
    '--- .PY FILES ---\\n\\n'
    """
    return f"--- {extension.upper()} FILES ---\n\n"


def format_file_header(relative_path: str, extension: str) -> str:
    """
    Header cho mot file: ten file + mo code fence voi language tag.

    >>> format_file_header("src/a.py", ".py")
    'File: src/a.py\\n```python\\n'
    """
    language = get_language_for_extension(extension)
    return f"File: {relative_path}\n```{language}\n"
