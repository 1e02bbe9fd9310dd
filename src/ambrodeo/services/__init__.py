from .counters import CounterMutator, CounterTarget
from .relations import RelationQuery
from .token_resolver import TokenResolver
