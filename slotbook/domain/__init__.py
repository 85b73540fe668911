"""Domain packages: catalog (search), booking (reservations), deposits (rules), payments (gateway)"""
