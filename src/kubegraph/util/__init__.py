# (c) Copyright IBM Corp. 2025

import itertools
import json
from collections import defaultdict
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple, TypeVar

from kubegraph.log import logger

T = TypeVar("T")
R = TypeVar("R")

# Simple implementation of a nested dictionary.
DictionaryOfStan = lambda: defaultdict(DictionaryOfStan)


def to_json(obj: Any) -> Optional[bytes]:
    """
    Convert obj to json.  Objects exposing to_dict() are serialized through it.

    :param obj: the object to serialize to json
    :return:  json bytes
    """
    try:

        def extractor(o):
            if hasattr(o, "to_dict"):
                return o.to_dict()
            if not hasattr(o, "__dict__"):
                logger.debug("Couldn't serialize non dict type: %s", type(o))
                return {}
            return {k: v for k, v in o.__dict__.items() if v is not None}

        return json.dumps(
            obj, default=extractor, sort_keys=False, separators=(",", ":")
        ).encode()
    except Exception:
        logger.debug("to_json non-fatal encoding issue: ", exc_info=True)


def is_truthy(value: Any) -> bool:
    """
    Check if a value is truthy, accepting various formats.

    Accepts True, "true" (any case), "1" and 1.
    """
    if value is None:
        return False

    if isinstance(value, bool):
        return value

    if isinstance(value, int):
        return value == 1

    if isinstance(value, str):
        return value.lower() == "true" or value == "1"

    return False


def batched(iterable: Iterable[T], size: int) -> Iterator[List[T]]:
    """
    Yield lists of at most <size> items pulled lazily from <iterable>.
    """
    if size < 1:
        raise ValueError("batch size must be at least 1")

    iterator = iter(iterable)
    while True:
        batch = list(itertools.islice(iterator, size))
        if not batch:
            return
        yield batch


def first_satisfying(
    items: Iterable[T],
    produce: Callable[[T], R],
    predicate: Callable[[R], bool],
    should_stop: Optional[Callable[[], bool]] = None,
) -> Tuple[Optional[T], Optional[R]]:
    """
    Apply <produce> to each item in order and stop at the first result accepted by
    <predicate>.  Items after that one are never produced.

    @param should_stop: optional check made before each item; when it returns True
      the iteration ends early
    @return: (item, result) of the accepted result, or (None, None) if no result
      was accepted
    """
    for item in items:
        if should_stop is not None and should_stop():
            break
        result = produce(item)
        if predicate(result):
            return item, result
    return None, None
