import json
from dataclasses import dataclass, field
from typing import Tuple

from .config import RESULT_TEMPLATE
from .errors import SerializationError


@dataclass(frozen=True)
class Link:
    url: str
    # Empty when the page had no usable title
    title: str = ""

    def to_dict(self):
        return {"url": self.url, "title": self.title}


@dataclass(frozen=True)
class MessageInfo:
    """
    Result of parsing one message.

    Mentions and emotions keep the order they were found in. Links do not
    when there are two or more of them: they come back in the order their
    pages finished loading.
    """
    mentions: Tuple[str, ...] = field(default_factory=tuple)
    emotions: Tuple[str, ...] = field(default_factory=tuple)
    links: Tuple[Link, ...] = field(default_factory=tuple)

    def to_dict(self):
        result = {
            "mentions": list(self.mentions),
            "emotions": list(self.emotions),
            "links": [link.to_dict() for link in self.links],
        }
        # Removes empty items
        return {k: result[k] for k in RESULT_TEMPLATE if result[k]}

    def to_json(self):
        try:
            return json.dumps(
                self.to_dict(),
                indent=2,           # Json formatting
                ensure_ascii=False) # Unicode fix for website titles
        except (TypeError, ValueError) as e:
            raise SerializationError(f"cannot encode message info: {e}") from e

    @classmethod
    def from_dict(cls, data):
        return cls(
            mentions=tuple(data.get("mentions", ())),
            emotions=tuple(data.get("emotions", ())),
            links=tuple(Link(url=item["url"], title=item.get("title", ""))
                        for item in data.get("links", ())),
        )

    @classmethod
    def from_json(cls, text):
        try:
            data = json.loads(text)
        except ValueError as e:
            raise SerializationError(f"cannot decode message info: {e}") from e
        return cls.from_dict(data)

    def __bool__(self):
        return bool(self.mentions or self.emotions or self.links)
