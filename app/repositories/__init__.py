"""레포지토리 패키지 — 엔티티 저장소 계층.

Repository package — Entity store layer.
``SqlAlchemyEntityStore`` executes query-engine predicates against the
database; ``InMemoryEntityStore`` interprets the same predicates in memory.
"""
