from typing import Callable, List, Optional, Tuple

StatusListener = Callable[["StatusLine"], None]


class StatusLine:
    """
    Process-wide battery indicator read by the host.

    The text only exists between init() and teardown(); outside that window
    current() returns None and updates are ignored.
    """

    def __init__(self, name: str = "kdeconnect-battery"):
        self.name = name
        self.active = False
        self.display = ""
        self.detail = ""
        self._listeners: List[StatusListener] = []

    def init(self) -> None:
        self.active = True
        self.display = ""
        self.detail = ""

    def teardown(self) -> None:
        self.active = False
        self.display = ""
        self.detail = ""
        self._notify()

    def update(self, display: str, detail: str) -> None:
        if not self.active:
            return
        self.display = display
        self.detail = detail
        self._notify()

    def current(self) -> Optional[Tuple[str, str]]:
        if not self.active:
            return None
        return self.display, self.detail

    def add_listener(self, listener: StatusListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: StatusListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
