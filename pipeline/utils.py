def mask_document_number(number: str) -> str:
    """Mask a document number for logs, keeping the last 3 characters"""
    if not number:
        return ""
    if len(number) <= 3:
        return "XXX"
    return f"{'X' * (len(number) - 3)}{number[-3:]}"
