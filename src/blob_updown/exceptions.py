class ConfigurationError(Exception):
    """Raised when the process is not fit to run a benchmark."""
