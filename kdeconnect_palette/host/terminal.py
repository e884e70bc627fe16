import asyncio
import re
from typing import Any, List, Optional
import pyperclip
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
from kdeconnect_palette.host.base import Host
from kdeconnect_palette.plugins.kdeconnect.status_line import StatusLine

URL_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://\S+$")


class TerminalHost(Host):
    """
    Host for the command line. Prompts go through rich, the clipboard stands
    in for the URL under the cursor and the selection is given up front.
    """

    def __init__(
        self,
        logger: Any,
        console: Optional[Console] = None,
        selection: Optional[str] = None,
    ):
        super().__init__()
        self.logger = logger
        self.console = console or Console()
        self.selection = selection or None

    async def prompt(self, label: str) -> str:
        return await asyncio.to_thread(Prompt.ask, label, console=self.console)

    async def choose(self, label: str, options: List[str]) -> str:
        for index, option in enumerate(options, start=1):
            self.console.print(f"  [bold]{index}[/bold]. {escape(option)}")
        answer = await asyncio.to_thread(
            Prompt.ask, f"{label} (number or id)", console=self.console
        )
        answer = answer.strip()
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1]
        return answer

    def selected_text(self) -> Optional[str]:
        return self.selection

    def url_at_point(self) -> Optional[str]:
        try:
            text = pyperclip.paste()
        except pyperclip.PyperclipException as e:
            self.logger.debug(f"Clipboard unavailable: {e}")
            return None
        text = (text or "").strip()
        if URL_PATTERN.match(text):
            return text
        return None

    def on_status_changed(self, status_line: StatusLine) -> None:
        current = status_line.current()
        if current is None:
            self.console.print(f"[dim]{escape(status_line.name)} off[/dim]")
            return
        display, detail = current
        self.console.print(f"[bold]{escape(display)}[/bold] [dim]{escape(detail)}[/dim]")

    def notify(self, message: str) -> None:
        self.console.print(escape(message))

    def report_error(self, message: str) -> None:
        self.console.print(f"[red]error:[/red] {escape(message)}")
