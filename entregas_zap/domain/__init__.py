"""Domain layer: entities, table models and pure business rules"""
