"""
Exceptions raised when a statement artifact cannot be read.
"""


class StatementFormatError(Exception):
    """
    Base error for an artifact that is rejected as a whole.

    Carries:
    - The filename that failed
    - The bank the artifact was attributed to (if any)
    - A short sample of the content that was inspected
    """

    def __init__(self, message: str, filename: str = None, bank_id: str = None, sample_text: str = None):
        self.message = message
        self.filename = filename
        self.bank_id = bank_id
        self.sample_text = sample_text

        details = []
        if filename:
            details.append(f"File: {filename}")
        if bank_id:
            details.append(f"Bank: {bank_id}")
        if sample_text:
            details.append(f"Sample: {sample_text[:200]}...")

        full_message = f"{message}\n" + "\n".join(details) if details else message
        super().__init__(full_message)


class UnsupportedFormatError(StatementFormatError):
    """No registered extractor claims the artifact."""

    def __init__(self, filename: str = None, sample_text: str = None):
        super().__init__(
            f"Could not detect a supported bank format for file: {filename or '<unnamed>'}",
            filename=filename,
            sample_text=sample_text,
        )


class HeaderNotFoundError(StatementFormatError):
    """An extractor claimed the artifact but its transaction header row is missing."""

    def __init__(self, bank_name: str, missing, filename: str = None, bank_id: str = None, sample_text: str = None):
        self.missing = tuple(missing)
        super().__init__(
            f"Could not find transaction header row in {bank_name} statement ({', '.join(self.missing)})",
            filename=filename,
            bank_id=bank_id,
            sample_text=sample_text,
        )
