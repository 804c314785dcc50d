"""SQLite persistence shared by the clipflow workers."""
