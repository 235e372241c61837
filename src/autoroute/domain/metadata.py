from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from autoroute.domain.models import ControllerAnnotation, Mapping


def qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


@dataclass(frozen=True)
class ControllerMetadata:
    """Everything the scanner knows about one controller class.

    ``cls`` may be None when the record was built from names only; the class
    is then imported by ``class_name`` at resolution time.
    """

    class_name: str
    class_annotations: dict[type[ControllerAnnotation], ControllerAnnotation]
    method_annotations: dict[str, tuple[Mapping, ...]] = field(default_factory=dict)
    cls: Optional[type] = None

    @classmethod
    def for_class(
        cls_,
        klass: type,
        class_annotations: dict[type[ControllerAnnotation], ControllerAnnotation],
        method_annotations: dict[str, tuple[Mapping, ...]],
    ) -> "ControllerMetadata":
        return cls_(
            class_name=qualified_name(klass),
            class_annotations=dict(class_annotations),
            method_annotations=dict(method_annotations),
            cls=klass,
        )
