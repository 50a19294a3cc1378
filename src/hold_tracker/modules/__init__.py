"""Feature modules: records, reminders, activities, notifications, users, auth."""
