"""Classification tables for languages and package managers.

Everything here is matched exactly (filename, or lowercase final
extension). Nothing is inferred from file contents: a file that no table
names is unclassified and never reported.
"""

# Final extension (lowercase, with dot) -> language tag
EXTENSION_LANGUAGES: dict[str, str] = {
    # Systems
    ".rs": "rust",
    ".c": "c",
    ".h": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".zig": "zig",
    ".ada": "ada",
    ".adb": "ada",
    ".ads": "ada",
    ".go": "go",
    # JVM / .NET
    ".java": "java",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".scala": "scala",
    ".clj": "clojure",
    ".cs": "csharp",
    ".fs": "fsharp",
    # Web
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "typescript",
    ".res": "rescript",
    ".resi": "rescript",
    ".elm": "elm",
    # Functional
    ".hs": "haskell",
    ".ml": "ocaml",
    ".mli": "ocaml",
    ".ex": "elixir",
    ".exs": "elixir",
    ".erl": "erlang",
    ".gleam": "gleam",
    ".scm": "scheme",
    ".rkt": "racket",
    ".jl": "julia",
    ".idr": "idris",
    ".lean": "lean",
    ".agda": "agda",
    # Scripting
    ".py": "python",
    ".rb": "ruby",
    ".php": "php",
    ".lua": "lua",
    ".sh": "shell",
    ".bash": "shell",
    ".ps1": "powershell",
    ".nim": "nim",
    ".swift": "swift",
    ".dart": "dart",
    ".r": "r",
}

# Exact filename -> language tag, for files without a telling extension
FILENAME_LANGUAGES: dict[str, str] = {
    "Rakefile": "ruby",
    "Gemfile": "ruby",
    "Pipfile": "python",
}

# Exact filename -> package manager tag, for manager configuration files.
# Lockfiles are deliberately absent: they belong to LOCKFILE_MANAGERS.
MANAGER_CONFIG_FILES: dict[str, str] = {
    ".npmrc": "npm",
    ".yarnrc": "yarn",
    ".yarnrc.yml": "yarn",
    ".pnpmfile.cjs": "pnpm",
    "pnpm-workspace.yaml": "pnpm",
    "bunfig.toml": "bun",
    "go.mod": "go-modules",
    "go.work": "go-modules",
}

# Exact filename -> package manager tag, for lockfiles and shrinkwraps
LOCKFILE_MANAGERS: dict[str, str] = {
    "package-lock.json": "npm",
    "npm-shrinkwrap.json": "npm",
    "yarn.lock": "yarn",
    "pnpm-lock.yaml": "pnpm",
    "bun.lockb": "bun",
    "bun.lock": "bun",
    "go.sum": "go-modules",
    "go.work.sum": "go-modules",
}

# Display names for report messages
MANAGER_NAMES: dict[str, str] = {
    "npm": "npm",
    "yarn": "Yarn",
    "pnpm": "pnpm",
    "bun": "Bun",
    "go-modules": "Go modules",
}


def classify_language(filename: str) -> str | None:
    """Get the language tag of a file, or None if it is unclassified.

    Args:
        filename: Base name of the file

    Returns:
        Language tag or None
    """
    if filename in FILENAME_LANGUAGES:
        return FILENAME_LANGUAGES[filename]
    if "." not in filename.lstrip("."):
        return None
    extension = "." + filename.rsplit(".", 1)[-1].lower()
    return EXTENSION_LANGUAGES.get(extension)


def manager_for_config(filename: str) -> str | None:
    """Get the package manager a configuration file belongs to."""
    return MANAGER_CONFIG_FILES.get(filename)


def manager_for_lockfile(filename: str) -> str | None:
    """Get the package manager a lockfile belongs to."""
    return LOCKFILE_MANAGERS.get(filename)


def manager_name(tag: str) -> str:
    return MANAGER_NAMES.get(tag, tag)
