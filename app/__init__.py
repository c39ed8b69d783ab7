"""
InsightScout application package.
"""
