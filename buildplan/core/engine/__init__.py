"""Engine — pure resolution of the build layout and dependency plan."""
