# Domain layer: framework-independent entities and repository contracts
