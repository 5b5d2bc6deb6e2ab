import re
from typing import Callable, List, Tuple


PASSWORD_REQUIREMENTS: Tuple[Tuple[str, Callable[[str], bool]], ...] = (
    ("8+ characters", lambda p: len(p) >= 8),
    ("Uppercase letter", lambda p: re.search(r"[A-Z]", p) is not None),
    ("Lowercase letter", lambda p: re.search(r"[a-z]", p) is not None),
    ("Number", lambda p: re.search(r"[0-9]", p) is not None),
)


def password_checklist(candidate: str) -> List[Tuple[str, bool]]:
    """Evaluate each requirement; drives the live checklist next to password inputs."""
    candidate = candidate or ""
    return [(label, test(candidate)) for label, test in PASSWORD_REQUIREMENTS]


def password_valid(candidate: str) -> bool:
    return all(ok for _, ok in password_checklist(candidate))
