"""Jobs y CLI para operadores."""
