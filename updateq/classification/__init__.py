"""Activity classification, keyword rule tables and supplementary-content extraction."""
