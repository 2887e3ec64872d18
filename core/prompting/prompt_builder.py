"""
Prompt Builder - Ghep prompt template + corpus thanh mot prompt text.

Layout:
    {template}

    --- SOURCE FILES ---

    --- .CS FILES ---

    File: src/Program.cs
    ```csharp
    ...
    ```

    --- Additional Instructions/Question ---
    {instructions}

Extensions duoc sap xep theo alphabet; file trong moi nhom giu thu tu
trong corpus.
"""

from typing import List

from core.ingestion.types import Corpus
from core.prompting.formatting import (
    ADDITIONAL_INSTRUCTIONS_HEADER,
    DEFAULT_ANALYSIS_LEAD,
    FILE_FOOTER,
    NO_FILES_BANNER,
    SOURCE_FILES_BANNER,
    format_file_header,
    format_section_header,
)


def build_prompt(
    corpus: Corpus,
    prompt_template: str,
    additional_instructions: str = "",
    include_template: bool = True,
    include_files: bool = True,
) -> str:
    """
    Tao prompt text day du de gui cho LLM.

    Args:
        corpus: Extension -> FileRecords
        prompt_template: Template dat o dau prompt
        additional_instructions: Cau hoi/yeu cau them cua user (optional)
        include_template: False -> dung cau mo dau mac dinh thay template
        include_files: False -> bo qua phan file

    Returns:
        Prompt text
    """
    parts: List[str] = []

    if include_template and prompt_template:
        parts.append(prompt_template + "\n\n")
    else:
        parts.append(DEFAULT_ANALYSIS_LEAD)

    has_files = any(records for records in corpus.values())
    if include_files and has_files:
        parts.append(SOURCE_FILES_BANNER)
        for extension in sorted(corpus):
            records = corpus[extension]
            if not records:
                continue
            parts.append(format_section_header(extension))
            for record in records:
                parts.append(format_file_header(record.relative_path, extension))
                parts.append(record.content)
                parts.append(FILE_FOOTER)
                parts.append("\n")
    elif include_files:
        parts.append(NO_FILES_BANNER)

    if additional_instructions:
        parts.append(ADDITIONAL_INSTRUCTIONS_HEADER)
        parts.append(additional_instructions + "\n")

    return "".join(parts)
