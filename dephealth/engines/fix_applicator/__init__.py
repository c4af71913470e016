"""Fix applicator engine: apply safe updates atomically."""

from dephealth.engines.fix_applicator.applicator import FixResult, apply_fixes, select_safe

__all__ = ["FixResult", "apply_fixes", "select_safe"]
