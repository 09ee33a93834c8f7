"""RetailHub exception hierarchy."""


class RetailHubError(Exception):
    """Base exception for all RetailHub errors."""

    def __init__(self, message: str = "", code: str = "RETAILHUB_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ConfigurationMissingError(RetailHubError):
    """Raised when provisioning prerequisites (settings, package) are absent."""

    def __init__(self, message: str = "Required configuration is missing"):
        super().__init__(message, code="CONFIGURATION_MISSING")


class TenantExistsError(RetailHubError):
    """Raised when a tenant identifier is already taken."""

    def __init__(self, message: str = "Tenant already exists"):
        super().__init__(message, code="TENANT_EXISTS")


class TenantNotFoundError(RetailHubError):
    def __init__(self, message: str = "Tenant not found"):
        super().__init__(message, code="NOT_FOUND")


class ImportFileError(RetailHubError):
    """Raised when an uploaded spreadsheet cannot be read."""

    def __init__(self, message: str = "Invalid import file"):
        super().__init__(message, code="INVALID_IMPORT_FILE")


class UnknownImportError(RetailHubError):
    def __init__(self, message: str = "No importer for this entity"):
        super().__init__(message, code="UNKNOWN_IMPORT")


class ImportFileTooLargeError(ImportFileError):
    def __init__(self, message: str = "Import file is too large"):
        super().__init__(message)
        self.code = "IMPORT_FILE_TOO_LARGE"
