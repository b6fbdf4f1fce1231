"""Navigation menu trees and path lookups."""
