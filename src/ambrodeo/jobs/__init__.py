from .reconcile_counters import reconcile_counters
