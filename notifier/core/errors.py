from __future__ import annotations

from enum import Enum, IntEnum


class ExitReason(IntEnum):
    MAIN_BUTTON_CLICKED = 0
    HELP_BUTTON_CLICKED = 1
    SECONDARY_BUTTON_CLICKED = 2
    TERTIARY_BUTTON_CLICKED = 3
    TIMEOUT = 4
    CANCEL_PRESSED = 5
    RECEIVED_SIGINT = 130
    INVALID_ARGUMENTS_SYNTAX = 200
    INVALID_ARGUMENT_FORMAT = 201
    INTERNAL_ERROR = 250


class ModelErrorKind(str, Enum):
    NO_TYPE_DEFINED = "no_type_defined"
    NO_INFO_TO_SHOW = "no_info_to_show"
    NO_BUTTON_DEFINED = "no_button_defined"
    NO_HELP_BUTTON_ALLOWED_IN_NOTIFICATION = "no_help_button_allowed_in_notification"
    INVALID_TIMEOUT = "invalid_timeout"


class DeepLinkErrorKind(str, Enum):
    FAILED_TO_GET_COMPONENTS = "failed_to_get_components"
    UNSUPPORTED_PATH = "unsupported_path"
    NO_PARAMETERS_FOUND = "no_parameters_found"
    INVALID_TOKEN = "invalid_token"


class ArgumentsErrorKind(str, Enum):
    INVALID_ARGUMENTS_SYNTAX = "invalid_arguments_syntax"
    INVALID_ARGUMENTS_FORMAT = "invalid_arguments_format"
    ERROR_BUILDING_NOTIFICATION_OBJECT = "error_building_notification_object"


ErrorKind = ModelErrorKind | DeepLinkErrorKind | ArgumentsErrorKind

_MESSAGES: dict[Enum, str] = {
    ModelErrorKind.NO_TYPE_DEFINED: 'No notification "type" parameter defined',
    ModelErrorKind.NO_INFO_TO_SHOW: (
        "No info to show for the desired UI type. Make sure to define all the mandatory fields "
        "for the desired UI type."
    ),
    ModelErrorKind.NO_BUTTON_DEFINED: "No button defined",
    ModelErrorKind.NO_HELP_BUTTON_ALLOWED_IN_NOTIFICATION: (
        'It\'s not allowed to define a help button in a "banner" UI type style.'
    ),
    ModelErrorKind.INVALID_TIMEOUT: "Timeout must be a non negative number of seconds",
    DeepLinkErrorKind.FAILED_TO_GET_COMPONENTS: "Failed to get URL's components",
    DeepLinkErrorKind.UNSUPPORTED_PATH: "URL's path is not supported",
    DeepLinkErrorKind.NO_PARAMETERS_FOUND: "Failed to get URL's parameters",
    DeepLinkErrorKind.INVALID_TOKEN: "Unauthorized request",
    ArgumentsErrorKind.INVALID_ARGUMENTS_SYNTAX: "Invalid arguments syntax.",
    ArgumentsErrorKind.INVALID_ARGUMENTS_FORMAT: "Invalid argument format.",
    ArgumentsErrorKind.ERROR_BUILDING_NOTIFICATION_OBJECT: (
        "Error while trying to create notification object from arguments: {detail}."
    ),
}


def describe(kind: ErrorKind, detail: str = "") -> str:
    template = _MESSAGES.get(kind, kind.value)
    return template.format(detail=detail) if "{detail}" in template else template


class NotifierError(Exception):
    def __init__(self, kind: ErrorKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(describe(kind, detail))


class ModelError(NotifierError):
    kind: ModelErrorKind


class DeepLinkError(NotifierError):
    kind: DeepLinkErrorKind


class ArgumentsError(NotifierError):
    kind: ArgumentsErrorKind

    @property
    def exit_reason(self) -> ExitReason:
        if self.kind == ArgumentsErrorKind.INVALID_ARGUMENTS_SYNTAX:
            return ExitReason.INVALID_ARGUMENTS_SYNTAX
        return ExitReason.INVALID_ARGUMENT_FORMAT

