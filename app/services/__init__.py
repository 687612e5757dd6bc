"""서비스 패키지 — 비즈니스 로직 계층.

Service package — Business logic layer.
``EntityService`` runs the dynamic query engine and the tenant/audit rules
for every registered entity; it talks to storage only through an EntityStore.
"""
