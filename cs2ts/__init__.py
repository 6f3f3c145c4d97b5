"""Generate TypeScript enums and Zod schemas from C# declarations."""

__version__ = "0.1.0"
