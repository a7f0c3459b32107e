"""
Core building blocks shared by the client and graph layers:
- result: Ok/Err outcome values
- errors: exception taxonomy
- types: pydantic data models
"""
