"""Storage backends implementing the DatabaseConnector interface"""
