from .file import FileReader, FileWriter
