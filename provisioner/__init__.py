"""
Provisioning of an n8n workflow-automation server on a fresh Ubuntu host.
"""
