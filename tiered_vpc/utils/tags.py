from typing import Dict, Optional

def get_default_tags(namespace: str, environment: str, name: str) -> Dict[str, str]:
    """
    Get default tags for AWS resources.
    
    Args:
        namespace: Namespace the resources belong to
        environment: Environment name (dev, prod, etc.)
        name: Name of the deployment
    
    Returns:
        Dict[str, str]: Dictionary of default tags
    """
    return {
        "Namespace": namespace,
        "Environment": environment,
        "Name": join_name(namespace, environment, name),
        "ManagedBy": "tiered-vpc",
    }

def merge_tags(default_tags: Dict[str, str], custom_tags: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """
    Merge default tags with custom tags.
    
    Args:
        default_tags: Default tags dictionary
        custom_tags: Optional custom tags dictionary
    
    Returns:
        Dict[str, str]: Merged tags dictionary
    """
    if custom_tags is None:
        return default_tags
    
    return {**default_tags, **custom_tags}

def join_name(*parts: str) -> str:
    """Join name parts with dashes, skipping empty ones."""
    return "-".join(part for part in parts if part)
