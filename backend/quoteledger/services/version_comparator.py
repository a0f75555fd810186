"""Version comparison: header diff plus item-level matching.

Item matching works in three stages for each item of the newer list:

1. Composite key ``room_job_index``. An item at the same key in the
   older list is compared field by field.
2. Job name. If the key is new, the first older item with the same job
   (anywhere in the list) is treated as the same line, modified.
3. Position. If the job is also new, the older item at the same index is
   treated as renamed when it is in the same room and would otherwise be
   reported as removed.

Stage 2 does not disambiguate duplicate job names: the first textual
match wins, and one older item can pair with several newer ones.
"""

from dataclasses import dataclass, field
from typing import Optional

from ..schemas.version import ComparisonResponse, HeaderDiff, ItemChanges, ModifiedItem
from ..models import item_to_dict
from .version_state import VersionState


@dataclass
class ItemDiff:
    added: list = field(default_factory=list)
    removed: list = field(default_factory=list)
    modified: list = field(default_factory=list)  # (old, new) pairs

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified)


def item_key(item: dict, index: int) -> str:
    return f"{item.get('room') or ''}_{item.get('job') or ''}_{index}"


def items_equal(a: dict, b: dict) -> bool:
    """Structural equality over the versioned item fields."""
    return item_to_dict(a) == item_to_dict(b)


def _first_with_job(items: list, job: Optional[str]) -> Optional[dict]:
    return next((item for item in items if item.get("job") == job), None)


def diff_items(items_a: list, items_b: list) -> ItemDiff:
    """Classify the items of *items_b* against *items_a* as added/removed/modified."""
    keyed_a = {item_key(item, i): item for i, item in enumerate(items_a)}
    keys_b = {item_key(item, i) for i, item in enumerate(items_b)}

    diff = ItemDiff()
    renamed = set()  # indexes in items_a paired by position

    for i, new in enumerate(items_b):
        old = keyed_a.get(item_key(new, i))
        if old is not None:
            if not items_equal(old, new):
                diff.modified.append((old, new))
            continue

        same_job = _first_with_job(items_a, new.get("job"))
        if same_job is not None:
            diff.modified.append((same_job, new))
            continue

        if i < len(items_a) and _is_renamed(items_a[i], i, new, keys_b, items_b):
            diff.modified.append((items_a[i], new))
            renamed.add(i)
            continue

        diff.added.append(new)

    for i, old in enumerate(items_a):
        if i in renamed or item_key(old, i) in keys_b:
            continue
        if _first_with_job(items_b, old.get("job")) is None:
            diff.removed.append(old)

    return diff


def _is_renamed(old: dict, index: int, new: dict, keys_b: set, items_b: list) -> bool:
    return (
        (old.get("room") or "") == (new.get("room") or "")
        and item_key(old, index) not in keys_b
        and _first_with_job(items_b, old.get("job")) is None
    )


def compare_states(quote_id: int, state_a: VersionState, state_b: VersionState) -> ComparisonResponse:
    """Diff two loaded states of the same quote (B relative to A)."""
    items = diff_items(state_a.items, state_b.items)

    header = HeaderDiff(
        name_changed=state_a.name != state_b.name,
        name_a=state_a.name,
        name_b=state_b.name,
        total_a=state_a.total,
        total_b=state_b.total,
        total_delta=state_b.total - state_a.total,
        notes_changed=(state_a.notes or None) != (state_b.notes or None),
        config_changed=state_a.config != state_b.config,
        item_count_a=len(state_a.items),
        item_count_b=len(state_b.items),
        item_count_delta=len(state_b.items) - len(state_a.items),
    )

    return ComparisonResponse(
        quote_id=quote_id,
        version_a=state_a.version_num,
        version_b=state_b.version_num,
        header=header,
        items=ItemChanges(
            added=items.added,
            removed=items.removed,
            modified=[ModifiedItem(old=old, new=new) for old, new in items.modified],
        ),
    )
