"""
Prisma Test Suite
=================

Test Categories:
- Unit Tests: geometry model, solver, configuration, I/O, CLI
- Property Tests: derivative accuracy and fit invariants (hypothesis)
- Integration Tests: end-to-end assessments and solver cross-checks
"""
