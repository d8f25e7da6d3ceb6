"""Responsibility allocation."""

from finance_control.allocation.allocator import ResponsibilityAllocator

__all__ = ["ResponsibilityAllocator"]
