from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .style import FRAGMENT_RE, FRAG_END, strip_markers


def index_fragments(text):
    """Map each fragment target name to the offset of its marker in ``text``.

    The first marker wins when a name occurs twice.
    """
    markers = {}
    for m in FRAGMENT_RE.finditer(text):
        if m.group() == FRAG_END:
            continue
        name = m.group()[1:-1]
        markers.setdefault(name, m.start())
    return markers


@dataclass(frozen=True)
class RenderedDocument:
    text: str
    links: Tuple = ()
    fragment_markers: Dict[str, int] = field(default_factory=dict)
    title: Optional[str] = None
    url: str = ""
    deferred: Tuple = ()

    @property
    def display_text(self):
        return strip_markers(self.text)

    def has_fragment(self, name):
        return name in self.fragment_markers
