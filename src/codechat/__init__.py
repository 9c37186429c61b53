"""codechat: a prompt-to-editor session service with a mocked assistant chat."""

__version__ = "0.1.0"
