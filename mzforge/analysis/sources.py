"""Plugin source inputs for the project-wide analyzers."""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple, Union


@dataclass
class PluginSource:
    """One plugin file of a project, in load order.

    `error` is set instead of `text` when the file could not be read.
    """

    name: str
    text: Optional[str] = None
    filename: Optional[str] = None
    error: Optional[str] = None

    @property
    def label(self) -> str:
        return self.filename or self.name

    @property
    def readable(self) -> bool:
        return self.error is None and self.text is not None


SourceLike = Union[PluginSource, Tuple[str, str]]


def as_sources(sources: Iterable[SourceLike]) -> List[PluginSource]:
    """Accept PluginSource entries or plain (name, text) pairs."""
    result = []
    for source in sources:
        if isinstance(source, PluginSource):
            result.append(source)
        else:
            name, text = source
            result.append(PluginSource(name=name, text=text))
    return result
