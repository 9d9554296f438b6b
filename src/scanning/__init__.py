"""
Домен Scanning: распознавание заводских табличек бытовой техники.

Pattern Library -> Text Parser -> Scan Orchestrator.
"""
