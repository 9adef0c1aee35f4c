"""Weekly summary assembly: bucket grouping, highlights and email rendering."""
