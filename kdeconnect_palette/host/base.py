from typing import List, Optional
from kdeconnect_palette.plugins.kdeconnect.status_line import StatusLine


class Host:
    """
    What the KDE Connect commands need from the program hosting them:
    prompts, the current selection, a status line and error reporting.
    """

    def __init__(self):
        self.status_lines: List[StatusLine] = []

    async def prompt(self, label: str) -> str:
        raise NotImplementedError

    async def choose(self, label: str, options: List[str]) -> str:
        raise NotImplementedError

    def selected_text(self) -> Optional[str]:
        return None

    def url_at_point(self) -> Optional[str]:
        return None

    def register_status(self, status_line: StatusLine) -> None:
        if status_line not in self.status_lines:
            self.status_lines.append(status_line)
            status_line.add_listener(self.on_status_changed)

    def unregister_status(self, status_line: StatusLine) -> None:
        if status_line in self.status_lines:
            self.status_lines.remove(status_line)
            status_line.remove_listener(self.on_status_changed)

    def on_status_changed(self, status_line: StatusLine) -> None:
        pass

    def status_text(self) -> str:
        """Joins the display strings of every registered status line."""
        parts = []
        for status_line in self.status_lines:
            current = status_line.current()
            if current and current[0]:
                parts.append(current[0])
        return " ".join(parts)

    def notify(self, message: str) -> None:
        raise NotImplementedError

    def report_error(self, message: str) -> None:
        raise NotImplementedError
