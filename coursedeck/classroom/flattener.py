"""
Flattener - Turn the nested course tree into a globally indexed slide sequence.

Provides:
- flatten(): module/slide tree -> ordered FlatEntry list
- is_last_in_module(): module boundary predicate
- FlatSequence: read-only view shared by the navigator and audio synchronizer
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from coursedeck.schemas import CourseContent, CourseModule, Slide


@dataclass(frozen=True)
class FlatEntry:
    """One slide with its position in the course."""
    slide: Slide
    module_index: int
    index_in_module: int
    global_index: int
    audio_index: int


def flatten(modules: Sequence[CourseModule]) -> list[FlatEntry]:
    """
    Flatten modules into slide order.

    Module order first, then slide order within each module. Modules without
    slides contribute nothing.
    """
    entries = []
    for module_index, module in enumerate(modules):
        for index_in_module, slide in enumerate(module.slides):
            entries.append(FlatEntry(
                slide=slide,
                module_index=module_index,
                index_in_module=index_in_module,
                global_index=len(entries),
                audio_index=module.audio_base_index + index_in_module,
            ))
    return entries


def is_last_in_module(entry: FlatEntry, modules: Sequence[CourseModule]) -> bool:
    """Check if entry is the final slide of its module."""
    return entry.index_in_module == len(modules[entry.module_index].slides) - 1


def total_slide_count(modules: Sequence[CourseModule]) -> int:
    return sum(len(module.slides) for module in modules)


class FlatSequence:
    """
    Flattened course with module membership lookups.

    Built once per course entry and never mutated.
    """

    def __init__(self, modules: Sequence[CourseModule]):
        self.modules: tuple[CourseModule, ...] = tuple(modules)
        self.entries: tuple[FlatEntry, ...] = tuple(flatten(self.modules))
        self._module_indices: dict[int, range] = {}
        start = 0
        for module_index, module in enumerate(self.modules):
            self._module_indices[module_index] = range(start, start + len(module.slides))
            start += len(module.slides)

    @classmethod
    def from_content(cls, content: CourseContent) -> "FlatSequence":
        return cls(content.modules)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> FlatEntry:
        return self.entries[index]

    def __iter__(self) -> Iterator[FlatEntry]:
        return iter(self.entries)

    def entry_at(self, index: int) -> Optional[FlatEntry]:
        """Get entry by global index, None if out of range."""
        if 0 <= index < len(self.entries):
            return self.entries[index]
        return None

    def module_of(self, index: int) -> CourseModule:
        return self.modules[self.entries[index].module_index]

    def module_indices(self, module_index: int) -> range:
        """Global indices of the slides belonging to a module."""
        return self._module_indices.get(module_index, range(0))

    def first_index_of_module(self, module_index: int) -> Optional[int]:
        indices = self.module_indices(module_index)
        return indices.start if indices else None

    def is_last_in_module(self, index: int) -> bool:
        return is_last_in_module(self.entries[index], self.modules)

    def boundary_modules(self, index: int) -> list[int]:
        """
        Modules whose end is crossed when advancing out of entry `index`.

        Empty unless `index` is the last slide of its module. Otherwise the
        entry's own module followed by any zero-slide modules that sit before
        the next entry's module (or the end of the course).
        """
        if not self.is_last_in_module(index):
            return []
        module_index = self.entries[index].module_index
        if index + 1 < len(self.entries):
            stop = self.entries[index + 1].module_index
        else:
            stop = len(self.modules)
        return list(range(module_index, stop))
