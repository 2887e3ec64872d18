"""
File Patterns Constants
Chua cac constants lien quan den file extensions, excluded directories
va cac tham so scan mac dinh.
"""

# Thu muc bi loai khoi scan mac dinh (so sanh khong phan biet hoa thuong)
DEFAULT_EXCLUDED_DIRS = frozenset(
    {
        "bin",
        "obj",
        "node_modules",
        "packages",
        ".git",
        ".vs",
    }
)

# Danh sach extensions mac dinh cho folder scan
DEFAULT_SOURCE_EXTENSIONS = (
    ".cs",
    ".xaml",
    ".java",
    ".js",
    ".ts",
    ".py",
    ".html",
    ".css",
    ".cpp",
    ".h",
    ".c",
    ".go",
    ".rb",
    ".php",
    ".swift",
    ".kt",
    ".rs",
    ".dart",
    ".scala",
    ".groovy",
    ".pl",
    ".sh",
    ".bat",
    ".ps1",
    ".xml",
    ".json",
    ".yaml",
    ".yml",
    ".md",
    ".txt",
)

# Gioi han kich thuoc file mac dinh (KB)
DEFAULT_MAX_FILE_SIZE_KB = 1024

# Progress callback toi da 1 lan moi 500ms (<= 2 Hz)
PROGRESS_THROTTLE_MS = 500

# Depth > nguong nay thi recurse tuan tu thay vi song song
DEFAULT_PARALLEL_DEPTH_LIMIT = 3

# So file doc dong thoi toi da khi user chon file thu cong
MANUAL_MAX_CONCURRENCY = 10
