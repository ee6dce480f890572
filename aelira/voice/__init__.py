"""Voice gateway, UDP transport, encryption and paced audio sending."""