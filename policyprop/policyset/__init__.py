"""Policy set status aggregation: reconciler, mappers and predicates."""