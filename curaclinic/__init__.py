# CuraClinic booking and assistant API
