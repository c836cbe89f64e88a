"""Services Layer — registries, validators, the materializer and the order pipeline.

Invariants:
    - Services read rows, hand snapshots to core/, and write the outcome
    - Business-rule violations come back as data; only missing resources and
      infrastructure failures raise

Design Decisions:
    - One service per aggregate (rules, constraints, temp files, order customizations)
"""
