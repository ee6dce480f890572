"""Track sources and the manager that dispatches between them."""