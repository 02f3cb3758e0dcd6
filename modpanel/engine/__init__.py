"""
Decision pipeline: policy retrieval, topic detection, ML classification and orchestration.
"""
