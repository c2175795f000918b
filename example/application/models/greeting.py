def greeting_for(name: str | None) -> str:
    """'Hello, Ada!' or a generic greeting when no name is known."""
    if not name:
        return "Hello from Lungo!"
    return f"Hello, {name.strip().title()}!"
