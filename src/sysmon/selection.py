"""Selected row and visible window of the process list."""


class Selection:
    """
    Tracks the selected row and the top row of the viewport.

    ``selected`` is an index into the freshly sorted list, not a pid. When a
    re-sort moves a different process into that index, the highlight
    follows the index and so silently refers to the other process.
    """

    def __init__(self, viewport_height: int = 1) -> None:
        self.selected = 0
        self.top = 0
        self.length = 0
        self._viewport_height = max(1, viewport_height)

    @property
    def viewport_height(self) -> int:
        return self._viewport_height

    @viewport_height.setter
    def viewport_height(self, value: int) -> None:
        self._viewport_height = max(1, value)

    def move_up(self) -> None:
        self.selected = max(0, self.selected - 1)
        if self.selected < self.top:
            self.top = self.selected

    def move_down(self) -> None:
        # Upper bound is applied by the next clamp()
        self.selected += 1

    def page_up(self) -> None:
        self.selected = max(0, self.selected - self._viewport_height)

    def page_down(self) -> None:
        self.selected += self._viewport_height

    def clamp(self, length: int) -> None:
        """Fit the selection to a rebuilt list, scrolling as little as possible."""
        self.length = length
        self.selected = max(0, min(self.selected, length - 1))
        if self.selected < self.top:
            self.top = self.selected
        elif self.selected >= self.top + self._viewport_height:
            self.top = self.selected - self._viewport_height + 1
