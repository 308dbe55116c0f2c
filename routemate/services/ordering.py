from typing import Iterable, List, Protocol, TypeVar


class Orderable(Protocol):
    is_start_point: bool
    is_end_point: bool
    sequence: int | None


StopT = TypeVar("StopT", bound=Orderable)


def order_stops(stops: Iterable[StopT]) -> List[StopT]:
    """Return stops in canonical travel order.

    The first stop flagged as start leads, the first (other) stop flagged as
    end trails, and everything in between follows ascending ``sequence``
    (missing sequence counts as 0). Later duplicates of a role flag are
    treated as interior stops. The sort is stable, so reordering an already
    canonical list returns it unchanged.
    """
    stops = list(stops)
    start = next((s for s in stops if s.is_start_point), None)
    end = next((s for s in stops if s.is_end_point and s is not start), None)

    interior = sorted(
        (s for s in stops if s is not start and s is not end),
        key=lambda s: s.sequence or 0,
    )

    ordered: List[StopT] = []
    if start is not None:
        ordered.append(start)
    ordered.extend(interior)
    if end is not None:
        ordered.append(end)
    return ordered
