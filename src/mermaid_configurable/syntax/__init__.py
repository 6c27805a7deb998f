"""AST types shared by parsers, layout and renderers."""
