"""
dealer_analytics package marker.
"""
