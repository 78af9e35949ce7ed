"""Classes and their sections: ordered list, reorder, status toggle and the class wizard."""
