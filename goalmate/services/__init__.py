"""
Service Layer Package

Async flows that sit between the view layer and the gamification core:
- VerificationService: AI-assisted module verification
- DailyCheckInService: persisted once-per-day check-in
- OperationGuard: per-entity in-flight tokens shared by both

Import services from their modules; the container wires them to a session.
"""
