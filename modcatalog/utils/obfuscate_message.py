"""
Used by the loguru sinks to keep user names out of the log files.
"""

import re


def obfuscate_message(message: str, anonymize_path: bool = True) -> str:
    """
    Obfuscate the message such that it does not reveal user information.

    Args:
        message: The message to obfuscate.
        anonymize_path: Whether to anonymize paths in the message.

    Returns:
        The obfuscated message.
    """
    if anonymize_path:
        message = _anonymize_path(message)

    return message


def _anonymize_path(message: str) -> str:
    """
    Replace the user name in home folder paths. OS agnostic.

    The message may or may not contain a path at all.
    """
    # Windows, keep the drive letter
    message = re.sub(r"([A-Za-z]:\\Users\\)[^\\]+\\", r"\1...\\", message)
    # Linux
    message = re.sub(r"/home/[^/]+/", r"/home/.../", message)
    # macOS
    message = re.sub(r"(^|[\s'\"(])/Users/[^/]+/", r"\1/Users/.../", message)

    return message
