"""
Argosy filter pipeline: ordered middleware around every command execution.

Collection
- Global filters (FilterOptions.global_filters) in registration order, followed by
  the filters attached to the command type (base classes first, unless
  FilterOptions.include_base_filters is False).

Ordering
- Stable ascending sort by order: lower orders run outer, equal orders keep the
  collection sequence.

Composition
- The chain is folded from the last descriptor to the first; each filter is
  resolved from the service provider when the chain is composed. Descriptors
  whose filter cannot be resolved are skipped and logged at debug level.
- No descriptor at all: the action is invoked directly.

Execution
- Each filter receives (context, next) where await next(context) runs the rest of
  the chain. Results and exceptions travel back up unchanged.
"""
import logging

from .faults import InvalidFilterError
from .handlers import is_filter
from .metadata import FilterDescriptor, filter_descriptors
from .utils import *

logger = logging.getLogger(__name__)


class FilterCollection:
    """Ordered global filter descriptors."""

    def __init__(self, options=None):
        self._options = options
        self._descriptors = []

    def add(self, filter_type, /, order=Unset):
        if not is_filter(filter_type):
            raise InvalidFilterError(
                f"{filter_type!r} does not implement execute(context, next)",
                hint="derive from argosy.CommandFilter or define an execute(context, next) method",
            )
        if order is Unset:
            order = self._options.default_order if self._options is not None else 0
        elif isinstance(order, bool) or not isinstance(order, int):
            raise TypeError("add() 'order' must be an integer")
        self._descriptors.append(FilterDescriptor(filter_type, order))

    @property
    def descriptors(self):
        return tuple(self._descriptors)

    def __iter__(self):
        return iter(tuple(self._descriptors))

    def __len__(self):
        return len(self._descriptors)

    def __contains__(self, filter_type):
        return any(descriptor.type is filter_type for descriptor in self._descriptors)


class FilterOptions:
    """
    Pipeline options.

    - global_filters: FilterCollection applied to every command.
    - include_base_filters: whether filters attached to base classes count (default True).
    - default_order: order used when a global filter is added without one (default 0).
    """

    def __init__(self):
        self._global_filters = FilterCollection(self)
        self.include_base_filters = True
        self.default_order = 0

    @property
    def global_filters(self):
        return self._global_filters

    def __repr__(self):
        return (
            f"filter-options(global_filters={len(self._global_filters)}, "
            f"include_base_filters={self.include_base_filters!r}, default_order={self.default_order!r})"
        )


def _stage(filter, next):
    async def stage(context):
        return await settle(filter.execute(context, next))
    return rename(stage, f"{type(filter).__name__}.stage")


class FilterPipeline:
    def __init__(self, services, options=None):
        self._services = services
        self._options = options if options is not None else FilterOptions()

    @property
    def options(self):
        return self._options

    def descriptors(self, command_type, /):
        """Descriptors applicable to a command type, sorted by order (stable)."""
        collected = [
            *self._options.global_filters,
            *filter_descriptors(command_type, inherit=self._options.include_base_filters),
        ]
        return tuple(sorted(collected, key=lambda descriptor: descriptor.order))

    async def execute(self, context, action, /):
        """Run action(context) wrapped in every applicable filter."""
        if not (descriptors := self.descriptors(context.command_type)):
            return await settle(action(context))

        async def chain(context):
            return await settle(action(context))

        for descriptor in reversed(descriptors):
            if (filter := self._services.resolve(descriptor.type)) is None:
                logger.debug("filter %s is not resolvable, skipped", descriptor.type.__qualname__)
                continue
            chain = _stage(filter, chain)

        return await chain(context)


__all__ = (
    "FilterCollection",
    "FilterOptions",
    "FilterPipeline",
)
