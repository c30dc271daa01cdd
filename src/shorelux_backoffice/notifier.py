from typing import List, Tuple


class ConsoleNotifier:
    """Prints success / error toasts to the terminal."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def success(self, message: str):
        if self.enabled:
            print(f"✅ {message}")

    def error(self, message: str):
        if self.enabled:
            print(f"❌ {message}")


class RecordingNotifier:
    """Keeps toasts in memory instead of showing them."""

    def __init__(self):
        self.messages: List[Tuple[str, str]] = []

    def success(self, message: str):
        self.messages.append(("success", message))

    def error(self, message: str):
        self.messages.append(("error", message))

    @property
    def last(self) -> Tuple[str, str]:
        return self.messages[-1] if self.messages else ("", "")
