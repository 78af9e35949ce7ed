"""Teacher directory: searchable list, bulk status changes and the teacher form."""
