"""HTTP routes, authentication and assembly of the web application."""