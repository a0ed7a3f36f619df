"""Services: version resolution, step execution and the external tools they drive."""
