"""Custom exception classes for the MP3 converter."""


class ConverterError(Exception):
    """Base exception for all application errors."""

    pass


class InvalidURLError(ConverterError):
    """The submitted URL is missing or does not point at a supported host."""

    def __init__(self, message: str = "Invalid YouTube URL") -> None:
        super().__init__(message)


class NotFoundError(ConverterError):
    """Something the client asked for does not exist (yet)."""

    pass


class JobNotFoundError(NotFoundError):
    """No job is registered under the given id."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__("Job not found")


class ArtifactNotFoundError(NotFoundError):
    """The job has no downloadable audio file."""

    pass


class DuplicateJobError(ConverterError):
    """A job with the same id is already registered."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Job already exists: {job_id}")


class JobStateError(ConverterError):
    """A job was asked to make a transition its state does not allow."""

    pass


class ProviderError(ConverterError):
    """Errors from the extraction provider."""

    pass


class YtDlpError(ProviderError):
    """yt-dlp exited with an error."""

    def __init__(self, returncode: int, message: str) -> None:
        self.returncode = returncode
        self.message = message
        super().__init__(f"yt-dlp error {returncode}: {message}")
