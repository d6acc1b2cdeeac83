"""Asset and Step base classes."""

import dataclasses
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from frontbuild.exceptions import TransformError


@dataclass(frozen=True)
class Asset:
    """A file travelling through a pipeline.

    Attributes:
        path: Current logical path; steps rename by replacing it
        contents: File bytes after the steps applied so far
        base: Static base of the pattern that matched the source. Output
              keeps the path relative to it.
        source: Original file on disk
        written: Where the asset was written, once it has been
    """
    path: Path
    contents: bytes
    base: Path
    source: Path
    written: Optional[Path] = None

    @property
    def relative(self) -> Path:
        """Path relative to the pattern base."""
        return self.path.relative_to(self.base)

    @property
    def text(self) -> str:
        """Contents as UTF-8 text.

        Raises:
            TransformError: if the contents are not valid UTF-8
        """
        try:
            return self.contents.decode('utf-8')
        except UnicodeDecodeError as e:
            raise TransformError(f"not valid UTF-8: {e.reason} at byte {e.start}",
                                 path=str(self.source)) from None

    def replace(self, **changes) -> 'Asset':
        return dataclasses.replace(self, **changes)

    def with_text(self, text: str) -> 'Asset':
        return self.replace(contents=text.encode('utf-8'))


class Step(ABC):
    """A single transform in a pipeline.

    Steps must not keep state between calls; the same step instance is
    shared by every file and every run of its task.
    """

    name = 'step'

    @abstractmethod
    def apply(self, asset: Asset) -> Union[Asset, List[Asset]]:
        """Transform one asset.

        Raises:
            TransformError: if the asset cannot be transformed
        """
        pass

    def params(self) -> Dict[str, Any]:
        """Parameters that change this step's output. Used in cache keys."""
        return {}

    def __repr__(self) -> str:
        return f"<Step: {self.name}>"


def run_steps(steps: Sequence[Step], asset: Asset) -> List[Asset]:
    """Apply steps in order, fanning out when a step returns a list."""
    assets = [asset]
    for step in steps:
        produced = []
        for item in assets:
            result = step.apply(item)
            if isinstance(result, list):
                produced.extend(result)
            else:
                produced.append(result)
        assets = produced
    return assets
