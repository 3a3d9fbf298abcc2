"""Built-in catalog data.

Served when no snapshot has ever loaded and the built-in fallback is
enabled, so the service never starts with zero components.
"""

from typing import Any, NamedTuple


class CategoryInfo(NamedTuple):
    name: str
    description: str
    icon: str
    subcategories: tuple[str, ...] = ()


KNOWN_CATEGORIES: dict[str, CategoryInfo] = {
    "animations": CategoryInfo(
        "Animations",
        "Animation components and utilities for creating smooth, engaging user experiences",
        "✨",
    ),
    "navigation": CategoryInfo(
        "Navigation",
        "Navigation components including headers, sidebars, and layout utilities",
        "\U0001f9ed",
        ("menus", "tabs", "breadcrumbs"),
    ),
    "feedback": CategoryInfo(
        "Feedback",
        "User feedback components like toasters, tooltips, and notifications",
        "\U0001f4ac",
    ),
    "ui-components": CategoryInfo(
        "UI Components",
        "Core UI components for building modern React applications",
        "\U0001f3a8",
    ),
    "buttons": CategoryInfo(
        "Buttons",
        "Interactive button components with various styles and animations",
        "\U0001f518",
        ("primary", "secondary", "animated"),
    ),
    "cards": CategoryInfo(
        "Cards",
        "Card layouts and containers for organizing content",
        "\U0001f3b4",
        ("basic", "gradient", "glassmorphism"),
    ),
    "forms": CategoryInfo(
        "Forms",
        "Form components and input elements with validation support",
        "\U0001f4dd",
    ),
}

DEFAULT_ICON = "\U0001f4e6"

# Raw category directory names produced by the extractor
CATEGORY_ALIASES: dict[str, str] = {
    "nimations": "animations",
    "avigation": "navigation",
    "eedback": "feedback",
    "ui-component": "ui-components",
}

DEFAULT_COMPONENTS: tuple[dict[str, Any], ...] = (
    {
        "id": "animated-button-1",
        "name": "Animated Button",
        "description": "A beautiful animated button with hover effects",
        "category": "buttons",
        "tags": ["animation", "hover", "interactive"],
        "codePreview": '<Button className="animated-btn">Click me</Button>',
        "dependencies": ["framer-motion", "tailwindcss"],
        "lastUpdated": "2024-01-15T10:00:00Z",
        "difficulty": "beginner",
        "demoUrl": "https://reactbits.dev/demo/animated-button-1",
    },
    {
        "id": "gradient-card-2",
        "name": "Gradient Card",
        "description": "Modern card component with gradient backgrounds",
        "category": "cards",
        "tags": ["gradient", "modern", "layout"],
        "codePreview": "<GradientCard>Content here</GradientCard>",
        "dependencies": ["react", "tailwindcss"],
        "lastUpdated": "2024-01-14T15:30:00Z",
        "difficulty": "intermediate",
    },
    {
        "id": "hover-card-3",
        "name": "Hover Card",
        "description": "Interactive card with smooth hover animations",
        "category": "cards",
        "tags": ["hover", "animation", "card"],
        "codePreview": "<HoverCard>Hover me</HoverCard>",
        "dependencies": ["react", "tailwindcss"],
        "lastUpdated": "2024-01-13T12:00:00Z",
        "difficulty": "beginner",
    },
    {
        "id": "glow-button-4",
        "name": "Glow Button",
        "description": "Button with elegant glow effect on hover",
        "category": "buttons",
        "tags": ["glow", "hover", "effect"],
        "codePreview": "<GlowButton>Glow Effect</GlowButton>",
        "dependencies": ["react", "tailwindcss"],
        "lastUpdated": "2024-01-12T09:15:00Z",
        "difficulty": "intermediate",
        "demoUrl": "https://reactbits.dev/demo/glow-button-4",
    },
)


def normalize_category(raw: str) -> str:
    """Map an extractor directory name onto its category id."""
    return CATEGORY_ALIASES.get(raw, raw)


__all__ = [
    "CategoryInfo",
    "KNOWN_CATEGORIES",
    "DEFAULT_ICON",
    "CATEGORY_ALIASES",
    "DEFAULT_COMPONENTS",
    "normalize_category",
]
