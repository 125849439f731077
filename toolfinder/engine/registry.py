"""Built-in utility catalog shipped with the site."""

from typing import Any, Dict, List

from .catalog import Catalog


DEFAULT_UTILITIES: List[Dict[str, Any]] = [
    # Text
    {
        "id": "base64-encoder",
        "name": "Base64 Encoder/Decoder",
        "description": "Encode and decode Base64 strings with real-time conversion",
        "category": "text",
        "keywords": ["base64", "encode", "decode", "conversion", "text"],
        "route": "/tools/base64",
        "featured": True,
    },
    {
        "id": "url-encoder",
        "name": "URL Encoder/Decoder",
        "description": "Encode and decode URLs for safe web transmission",
        "category": "text",
        "keywords": ["url", "encode", "decode", "percent", "web"],
        "route": "/tools/url-encoder",
    },
    {
        "id": "case-converter",
        "name": "Case Converter",
        "description": "Convert text between different cases: uppercase, lowercase, title case",
        "category": "text",
        "keywords": ["case", "uppercase", "lowercase", "title", "camel", "snake"],
        "route": "/tools/case-converter",
    },
    {
        "id": "word-counter",
        "name": "Word Counter",
        "description": "Count words, characters, paragraphs, and reading time",
        "category": "text",
        "keywords": ["word", "count", "character", "paragraph", "reading", "time"],
        "route": "/tools/word-counter",
    },
    # Developer
    {
        "id": "json-formatter",
        "name": "JSON Formatter",
        "description": "Format, validate, and minify JSON with syntax highlighting",
        "category": "developer",
        "keywords": ["json", "format", "validate", "minify", "pretty", "syntax"],
        "route": "/tools/json-formatter",
        "featured": True,
    },
    {
        "id": "jwt-decoder",
        "name": "JWT Decoder",
        "description": "Decode and verify JSON Web Tokens (JWT)",
        "category": "developer",
        "keywords": ["jwt", "json", "web", "token", "decode", "verify"],
        "route": "/tools/jwt-decoder",
    },
    {
        "id": "hash-generator",
        "name": "Hash Generator",
        "description": "Generate MD5, SHA-1, SHA-256, and other hash values",
        "category": "developer",
        "keywords": ["hash", "md5", "sha1", "sha256", "checksum", "crypto"],
        "route": "/tools/hash-generator",
    },
    {
        "id": "color-picker",
        "name": "Color Picker",
        "description": "Pick colors and convert between HEX, RGB, HSL formats",
        "category": "developer",
        "keywords": ["color", "picker", "hex", "rgb", "hsl", "palette"],
        "route": "/tools/color-picker",
    },
    # Image
    {
        "id": "image-resizer",
        "name": "Image Resizer",
        "description": "Resize images while maintaining aspect ratio",
        "category": "image",
        "keywords": ["image", "resize", "scale", "dimensions", "aspect", "ratio"],
        "route": "/tools/image-resizer",
    },
    {
        "id": "qr-generator",
        "name": "QR Code Generator",
        "description": "Generate QR codes for text, URLs, and other data",
        "category": "image",
        "keywords": ["qr", "code", "generator", "barcode", "scan"],
        "route": "/tools/qr-generator",
        "featured": True,
    },
    {
        "id": "placeholder-image",
        "name": "Placeholder Image Generator",
        "description": "Generate placeholder images with custom dimensions and colors",
        "category": "image",
        "keywords": ["placeholder", "image", "generator", "dimensions", "mockup"],
        "route": "/tools/placeholder-image",
    },
    # Productivity
    {
        "id": "password-generator",
        "name": "Password Generator",
        "description": "Generate secure passwords with customizable options",
        "category": "productivity",
        "keywords": ["password", "generator", "secure", "random", "strong"],
        "route": "/tools/password-generator",
        "featured": True,
    },
    {
        "id": "uuid-generator",
        "name": "UUID Generator",
        "description": "Generate unique identifiers (UUID/GUID) in various formats",
        "category": "productivity",
        "keywords": ["uuid", "guid", "unique", "identifier", "random"],
        "route": "/tools/uuid-generator",
    },
    {
        "id": "unit-converter",
        "name": "Unit Converter",
        "description": "Convert between different units of measurement",
        "category": "productivity",
        "keywords": ["unit", "convert", "measurement", "metric", "imperial"],
        "route": "/tools/unit-converter",
    },
    {
        "id": "timestamp-converter",
        "name": "Timestamp Converter",
        "description": "Convert between Unix timestamps and human-readable dates",
        "category": "productivity",
        "keywords": ["timestamp", "unix", "date", "time", "convert", "epoch"],
        "route": "/tools/timestamp-converter",
    },
    # Fun
    {
        "id": "lorem-generator",
        "name": "Lorem Ipsum Generator",
        "description": "Generate placeholder text for design and development",
        "category": "fun",
        "keywords": ["lorem", "ipsum", "placeholder", "text", "dummy", "filler"],
        "route": "/tools/lorem-generator",
    },
    {
        "id": "random-quote",
        "name": "Random Quote Generator",
        "description": "Get inspired with random quotes from famous people",
        "category": "fun",
        "keywords": ["quote", "random", "inspiration", "famous", "wisdom"],
        "route": "/tools/random-quote",
    },
    {
        "id": "dice-roller",
        "name": "Dice Roller",
        "description": "Roll virtual dice for games and decision making",
        "category": "fun",
        "keywords": ["dice", "roll", "random", "game", "decision"],
        "route": "/tools/dice-roller",
    },
    {
        "id": "coin-flip",
        "name": "Coin Flip",
        "description": "Flip a virtual coin for quick decisions",
        "category": "fun",
        "keywords": ["coin", "flip", "heads", "tails", "decision", "random"],
        "route": "/tools/coin-flip",
    },
]


def default_catalog() -> Catalog:
    """Catalog of the site's built-in utilities."""
    return Catalog.from_records(DEFAULT_UTILITIES)
