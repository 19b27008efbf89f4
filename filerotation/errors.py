"""File errors raised while validating, creating, opening, or deleting log files."""


class FileError(Exception):
    def __init__(self, path: str, message: str):
        super().__init__(f"{message}: {path}")
        self.path = path


class CreateDirFailed(FileError):
    def __init__(self, path: str):
        super().__init__(path, "Failed to create directory")


class CreateFileFailed(FileError):
    def __init__(self, path: str):
        super().__init__(path, "Failed to create file")


class OpenFailed(FileError):
    def __init__(self, path: str):
        super().__init__(path, "Failed to open file for writing")


class InvalidPermission(FileError):
    def __init__(self, path: str, permission):
        super().__init__(path, f"Invalid file permission {permission!r}")
        self.permission = permission


class NotAFile(FileError):
    def __init__(self, path: str):
        super().__init__(path, "Path is not a file")


class DeleteFailed(FileError):
    def __init__(self, path: str):
        super().__init__(path, "Failed to delete file")
