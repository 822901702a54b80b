"""Root policy reconciliation: reconciler, mappers and predicates."""