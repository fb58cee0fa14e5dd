class ConfigurationError(ValueError):
    pass
