from __future__ import annotations


class PreconditionError(ValueError):
    """A requested action was declined; prior state is left untouched."""

    def __init__(self, title: str, description: str = "") -> None:
        super().__init__(f"{title}: {description}" if description else title)
        self.title = title
        self.description = description
