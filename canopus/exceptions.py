class CanopusError(Exception):
    pass


class CodeOwnersNotFoundError(CanopusError):
    pass


class MultipleCodeOwnersError(CanopusError):
    pass


class ConfigurationNotFoundError(CanopusError):
    pass


class InvalidConfigurationError(CanopusError):
    pass


class PathWalkingError(CanopusError):
    def __init__(self, msg: str) -> None:
        super().__init__("cannot list project paths: " + msg)
