"""Exception hierarchy for codechat."""

ExtraInfoType = dict[str, str | None]


class CodechatError(Exception):
    """Base error for codechat."""

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        msg = message
        if extra_info:
            msg += " (" + ", ".join([f"{key}: {value}" for key, value in extra_info.items() if value is not None]) + ")"
        super().__init__(msg)


class NotFoundError(CodechatError):
    """A requested resource does not exist."""


class RepositoryError(CodechatError):
    """An external repository could not be resolved."""

    def __init__(self, reference: str, message: str | None = None, extra_info: ExtraInfoType | None = None):
        self.reference = reference
        if not extra_info:
            extra_info = {}
        super().__init__(
            message="The repository could not be resolved.",
            extra_info={"reference": reference, "message": message, **extra_info},
        )


class InvalidReferenceError(RepositoryError):
    """The repository reference does not look like github.com/<owner>/<repo>."""

    def __init__(self, reference: str):
        super().__init__(reference, "Invalid GitHub URL")


class RepositoryNotFoundError(RepositoryError, NotFoundError):
    """The repository reference is well-formed but the repository is missing."""

    def __init__(self, reference: str, status_code: int | None = None):
        super().__init__(
            reference,
            "Repository not found",
            extra_info={"status": str(status_code) if status_code is not None else None},
        )


class SessionNotFoundError(NotFoundError):
    """No session exists with the given identifier."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__("Session not found", extra_info={"session_id": session_id})


class FileReadError(CodechatError):
    """An attached local file could not be decoded as text."""

    def __init__(self, name: str, reason: str | None = None):
        self.name = name
        super().__init__("Failed to read file", extra_info={"file": name, "reason": reason})


class PersistenceError(CodechatError):
    """The session store rejected a write or read."""

    def __init__(self, action: str, reason: str | None = None):
        self.action = action
        super().__init__("A storage error occurred.", extra_info={"action": action, "reason": reason})
