"""
Forward Curve Engine

Modules:
- pwflat: piecewise flat forward curve evaluation (value/integral/discount/spot)
- curves: append-only curve container, read-only views, QC report, curve shocks
- cashflows: present value, duration, partial duration, convexity, z-spread
- risk: bump-and-reprice DV01 and analytic reconciliation
- scenarios: forward curve shock scenario runner
- utils: strictly increasing check + lower bound search
"""
