# SPDX-License-Identifier: MIT
"""Shared utilities."""
